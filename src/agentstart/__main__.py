"""
Main entry point for AgentStart CLI

This allows running the CLI with: python -m agentstart
"""
from .cli import main

if __name__ == "__main__":
    main()
