"""Push notification backend: device registry, recipients, dispatch and reminders."""
