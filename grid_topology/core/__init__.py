"""Port, component and wire models plus the per-type rule table."""
