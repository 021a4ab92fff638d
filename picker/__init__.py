"""
wheelspin picker package.

Layered the same way throughout:

  picker/repositories/  pure I/O: loading from and persisting to JSON files.
  picker/services/      business logic: selection, list state, spin sessions.

``WheelPicker`` (in ``wheelspin.py``) is the integration point: it creates the
repository, store, scheduler and session instances in ``__init__`` and exposes
them as public attributes (e.g. ``picker.store``, ``picker.session``).  The
terminal front end only talks to those objects, never to the files directly.
"""
