"""Command line front end for dbassert."""
