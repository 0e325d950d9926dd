from smartboard.blueprints.api.board import board_api

__all__ = ["board_api"]
