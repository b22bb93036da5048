"""Services at the boundary with external collaborators."""
