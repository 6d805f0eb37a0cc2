# Meme Grid Editor Backend - imgflip catalog grid and meme editor
