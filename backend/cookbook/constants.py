"""
Static constants shared across the CookBook backend.
"""

USERS_COLLECTION = "users"
RECIPES_COLLECTION = "recipes"

RECIPE_CATEGORIES = [
    "Breakfast",
    "Lunch",
    "Dinner",
    "Dessert",
    "Snack",
    "Appetizer",
    "Beverage",
]

RECIPE_DIFFICULTIES = ["Easy", "Medium", "Hard"]

RECIPE_NOT_FOUND = "Recipe not found"
USER_NOT_FOUND = "User not found"
