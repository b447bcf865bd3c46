"""External collaborators: place lookup, industry table, text extraction."""
