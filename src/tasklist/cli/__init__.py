"""Console front-end and composition root."""
