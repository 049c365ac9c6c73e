"""EduMind backend source root; packages are imported top-level (``core``, ``api`` ...)."""
