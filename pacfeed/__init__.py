"""pacfeed - subscribed feeds merged into one list, with dismissals that stay dismissed."""
