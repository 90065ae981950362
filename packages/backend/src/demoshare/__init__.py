"""demoshare — share unreleased music on your terms.

Backend for creators who upload tracks into projects, share them through
tokenized links, collect comments and timestamped feedback, and receive
tips by card or crypto.
"""

__version__ = "0.1.0"
