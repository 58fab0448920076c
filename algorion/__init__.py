"""
Algorion - Cooperative Riddle Game Server

A session engine for a turn-based cooperative puzzle game played by a small
group and one game master. It provides:
- A shared action-point pool (PH) and the cost of every action
- Turn order, rounds and round-modifier events
- Riddles that yield hint fragments without repetition
- Hero abilities
- Final assembly of the hints and the closing challenge
"""

__version__ = "0.1.0"
