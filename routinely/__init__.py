"""routinely - access control and visibility rules for shared routines."""
