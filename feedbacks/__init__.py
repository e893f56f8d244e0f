"""
Feedback read path.

Turns tagged rows from the feedback table into plain records and serves them
page by page over a createdAt window:
  - values: tagged value model and normalization
  - store: range-query access to the table
  - query: pagination, cursors and default windows
  - handler: direct and HTTP-shaped entry points
"""

__version__ = "0.1.0"
