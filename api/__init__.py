"""Job-candidate matching service API package."""
