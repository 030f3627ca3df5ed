"""Projects (developments) management."""
