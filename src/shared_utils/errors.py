class InvalidInputError(ValueError):
    """Raised for structurally bad input: empty, mismatched or odd-sized grids and images,
    unknown overlay modes, negative weights. Construction is aborted, nothing is retried."""
