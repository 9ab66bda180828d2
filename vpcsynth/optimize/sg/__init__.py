"""Security group rule optimization."""