"""Study plan scheduler: learning plans with day-bucketed steps."""
