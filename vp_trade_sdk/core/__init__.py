"""Trading core: errors, EVM and Solana execution, and venues."""
