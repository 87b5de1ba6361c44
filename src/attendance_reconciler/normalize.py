def normalize_name(name):
	"""
	Normalize a display name into a match key. Trims surrounding whitespace and lowercases.

	Never fails: None, blanks and non-string cells all come back as a string, and
	an empty result means the name cannot be matched.
	"""
	if name is None:
		return ""
	return str(name).strip().lower()
