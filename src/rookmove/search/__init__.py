"""Heuristic move selectors (random, huddle, swarm, worst-move)."""
