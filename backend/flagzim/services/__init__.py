"""Domain services: score store, country reference data and the quiz.

Routes and socket handlers import from here, keeping transport concerns
separated from the game and ranking rules.
"""
