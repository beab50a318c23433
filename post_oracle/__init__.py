"""Post Oracle: off-chain similarity moderation bridge."""
