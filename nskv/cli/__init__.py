"""nskv command line interface."""
