"""rndvx services."""
