"""Expert interpretation of threat assessments."""
