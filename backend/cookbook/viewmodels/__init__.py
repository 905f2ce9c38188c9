"""
Screen view-models: observable state slots plus the tasks that feed them.
"""

from cookbook.viewmodels.auth_viewmodel import AuthViewModel
from cookbook.viewmodels.base import ViewModel
from cookbook.viewmodels.recipe_viewmodel import RecipeViewModel

__all__ = ["AuthViewModel", "RecipeViewModel", "ViewModel"]
