"""Client de réservation de cours."""
