"""REST API for the EFS provisioner."""
