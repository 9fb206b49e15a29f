# LazyAudio - Mode-based desktop recorder

"""
Desktop recording application with mutually exclusive primary modes
(meeting, interviewer, interviewee) and hotkey-driven overlay modes.
"""

__version__ = "0.1.0"
__app_name__ = "LazyAudio"
