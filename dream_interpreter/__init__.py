from dream_interpreter.app import create_app

__all__ = ["create_app"]
