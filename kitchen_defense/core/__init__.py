# Simulation core: board, combatants, combat, recipes, enemy AI and the turn engine
