"""Field survey domain: questions, questionnaires, interviews and producers."""

__version__ = "0.1.0"
