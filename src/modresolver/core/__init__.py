"""Core model of modresolver: versions, dependency graphs and reports."""
