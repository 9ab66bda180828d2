"""Generation of network ACLs and security groups from a specification."""