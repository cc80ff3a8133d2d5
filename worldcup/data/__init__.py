"""Static tournament configuration: roster, groups, fixtures and bracket wiring. Read-only."""
