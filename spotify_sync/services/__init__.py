"""Services built on the sync context: remote client, controls, controller, host bridge."""
