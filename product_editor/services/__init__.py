"""Editor services - catalog client, notifications and the editor session."""
