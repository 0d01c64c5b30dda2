"""Status catalog module - the ordered set of workflow statuses."""
