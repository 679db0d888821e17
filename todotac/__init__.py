"""
TodoTac - Todo Tic-Tac-Toe Engine

Tic-Tac-Toe where every square is a to-do item. The human claims a square
by completing a generated task; the opponent is driven by a text-generation
service. The package provides:
- Board state and win detection
- Oracle contracts (task generation, opponent move selection)
- An async game session state machine
- A REST/WebSocket API and a terminal client
"""

__version__ = "0.1.0"
