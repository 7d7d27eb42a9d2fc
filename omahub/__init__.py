"""OmaHub favourites service."""
