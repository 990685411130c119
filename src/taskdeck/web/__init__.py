"""Static browser UI for the task manager."""
