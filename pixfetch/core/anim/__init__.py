from .animator import Animator, StepAction, TickDriver, Tween, linear

__all__ = ["Animator", "Tween", "TickDriver", "linear", "StepAction"]
