"""Render dialog actions as TwiML for the Twilio voice webhook."""

from __future__ import annotations

from collections.abc import Iterable

from twilio.twiml.voice_response import VoiceResponse

from src.dialog.models import Action, Gather, Hangup, Record, Redirect, Route, Say


def _url(base_url: str, route: Route) -> str:
    return f"{base_url.rstrip('/')}{route}"


def render_twiml(actions: Iterable[Action], base_url: str = "", voice: str = "Polly.Matthew") -> str:
    """Build the TwiML document for one turn.

    Args:
        actions: Actions in the order the gateway should execute them.
        base_url: Public URL prefix for callback routes; relative when empty.
        voice: Twilio text-to-speech voice.
    """
    response = VoiceResponse()
    for action in actions:
        if isinstance(action, Say):
            response.say(action.text, voice=voice)
        elif isinstance(action, Gather):
            options: dict[str, object] = {
                "input": " ".join(action.inputs),
                "action": _url(base_url, action.action),
                "method": "POST",
            }
            if "speech" in action.inputs:
                options["speech_timeout"] = "auto"
                options["language"] = "en-US"
            if action.num_digits is not None:
                options["num_digits"] = action.num_digits
            if action.timeout is not None:
                options["timeout"] = action.timeout
            gather = response.gather(**options)
            if action.prompt:
                gather.say(action.prompt, voice=voice)
        elif isinstance(action, Record):
            options = {
                "action": _url(base_url, action.action),
                "method": "POST",
                "max_length": action.max_length,
                "play_beep": True,
                "timeout": action.timeout,
            }
            if action.transcribe_callback is not None:
                options["transcribe"] = True
                options["transcribe_callback"] = _url(base_url, action.transcribe_callback)
            response.record(**options)
        elif isinstance(action, Redirect):
            response.redirect(_url(base_url, action.target), method="POST")
        elif isinstance(action, Hangup):
            response.hangup()
        else:
            raise TypeError(f"Unsupported dialog action: {action!r}")
    return str(response)
