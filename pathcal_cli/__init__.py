"""
Pathcal CLI - Command-line interface for maps and editor sessions.

Usage:
    pathcal-cli maps
    pathcal-cli --config config/editor.yaml locate 20
    pathcal-cli --map-id 3 alarm 12.5
    pathcal-cli --map-id 3 set-meters 2 15
    pathcal-cli --map-id 3 save
"""

__version__ = "1.0.0"
