"""Engine session, request coordination and move dispatch for rookmove."""

# Submodules are not imported here; use e.g.
# ``from rookmove.engine.dispatcher import MoveDispatcher``.
