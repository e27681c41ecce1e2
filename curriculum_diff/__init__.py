"""
curriculum_diff - checks a published curriculum page against the authoritative sheet.
"""
