"""Command-line scripts for data generation, training, and batch scoring."""
