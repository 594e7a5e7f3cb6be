"""AI players and the game loop that drives them."""
