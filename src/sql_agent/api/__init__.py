"""
SQL Agent API
=============

FastAPI service exposing the direct pipeline and the agent.
"""
