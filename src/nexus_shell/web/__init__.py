"""Web UI package — Flask JSON API over a Nexus Shell desktop."""
