"""Sign, notarize and staple Apple artifacts with rcodesign."""
