ERRORS = {
  "E_CORRUPTED": "Recorded digest does not match entry content",
  "E_UNTRUSTED": "Entry lacks the required number of valid signatures",
  "E_FAILED": "Entry could not be checked",
}

# Exit status bits; combine with |
EXIT_CORRUPTED = 0x1
EXIT_UNTRUSTED = 0x2
EXIT_FAILED = 0x4

# Cancelled run (SIGINT convention)
EXIT_INTERRUPTED = 130
