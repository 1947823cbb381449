"""Request and response schemas for the classbook API."""
