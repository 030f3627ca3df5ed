"""Client portal: invitations, wizard rules and pricing."""
