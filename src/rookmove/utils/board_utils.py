import chess
import numpy as np


def color_plane(board: chess.Board, color: chess.Color) -> np.ndarray:
    """
    Converts the pieces of one side to an (8, 8) occupancy array.
    Index ``[rank, file]`` is 1 where *color* has a piece, kings included.
    """
    plane = np.zeros((8, 8), dtype=np.int8)

    for square in chess.SquareSet(board.occupied_co[color]):
        # Chess squares are mapped from a1 (0) to h8 (63)
        plane[chess.square_rank(square), chess.square_file(square)] = 1

    return plane


def chebyshev_distance_sum(plane: np.ndarray, target: chess.Square) -> int:
    """Sum of king-move distances from every occupied cell of *plane* to *target*."""
    ranks, files = np.nonzero(plane)
    if ranks.size == 0:
        return 0
    rank_diff = np.abs(ranks - chess.square_rank(target))
    file_diff = np.abs(files - chess.square_file(target))
    return int(np.maximum(rank_diff, file_diff).sum())
