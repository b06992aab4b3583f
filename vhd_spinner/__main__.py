from vhd_spinner.cli import provision

if __name__ == "__main__":
    provision()
