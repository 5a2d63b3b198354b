from erlang_term_json.app import console_command

if __name__ == "__main__":
    console_command()
