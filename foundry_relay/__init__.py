"""
foundry-relay - relay chat messages to an Azure AI Foundry agent.

A small bot that forwards user messages to a remotely hosted agent and
streams the agent's answer back to the user, keeping one remote conversation
thread per chat conversation.
"""

__version__ = "0.1.0"
__author__ = "foundry-relay Contributors"
