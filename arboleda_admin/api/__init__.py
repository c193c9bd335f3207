"""La Arboleda admin API."""
