from coach.models.response import ChatUpdate, Suggestion

__all__ = ["ChatUpdate", "Suggestion"]
