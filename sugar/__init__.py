"""Connect to EC2 instances by name fragment."""
