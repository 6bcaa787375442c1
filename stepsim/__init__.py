"""
stepsim

Step-indexed consensus simulator with a commit-reveal wager protocol
and a scripted assertion harness.
"""
__version__ = "0.1.0"
