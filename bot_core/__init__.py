"""Bot Framework glue for the guessing game: dispatcher, state, storage and adapter."""
