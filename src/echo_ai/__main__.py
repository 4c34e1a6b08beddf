from echo_ai.clients import disc

if __name__ == "__main__":
    disc.run()
