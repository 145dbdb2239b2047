"""Storage collaborators: roster, block repository and history sink."""
