"""FinTrack package.

Tracks income, expenses and fixed-term certificate investments, and
works out which monthly certificate interest payments are due, upcoming
or already claimed.  See ``classifier.py`` and ``claims.py`` for the
entry points used by the API and the Streamlit app.
"""
