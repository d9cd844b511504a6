"""Client-side grievance lifecycle dashboards for a civic-complaint backend."""

__version__ = "1.0.0"
