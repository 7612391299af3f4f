"""Domain layer: pure email-to-notification logic, no I/O."""
