"""Veterinary registry — clients, species, breeds and pets."""
