"""fcovparse - functional coverage report parsing engine.

Parses URG-style dashboard, groups, hierarchy, module list and assertion
reports into an in-memory coverage database, sequentially or in parallel
chunks over a memory-mapped file.
"""

__version__ = "1.0.0"
