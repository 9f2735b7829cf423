"""depcache - dependency cache keying, restore and save for JVM build tools.

The restore step fingerprints the project's dependency declaration files,
persists the resulting key and restores a matching cache archive. The save
step, run later in a separate process, reads the key back and uploads the
cache only when its content may have changed.
"""

__version__ = "0.1.0"
