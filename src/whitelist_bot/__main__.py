from whitelist_bot.app.bot import run

if __name__ == "__main__":
    run()
